from __future__ import annotations
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .auth import get_current_user
from ..db import get_db
from ..models import User, UserRole

router = APIRouter(prefix="/api/v1/auth/roles", tags=["roles"])

logger = logging.getLogger(__name__)

RoleName = Literal["student", "teacher", "researcher"]
BASE_ROLE = "student"


class RoleAction(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

	action: Optional[Literal["switch_role", "add_role", "remove_role", "update_preferences"]] = None
	role: Optional[RoleName] = None
	preferences: Optional[Dict[str, Any]] = None
	is_default: bool = False


class RoleReplace(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

	current_role: RoleName
	available_roles: List[RoleName]
	role_preferences: Dict[str, Dict[str, Any]] = {}


def _rows(db: Session, user_id: str) -> List[UserRole]:
	return db.query(UserRole).filter(UserRole.user_id == user_id).order_by(UserRole.created_at).all()


def require_role(role: RoleName):
	"""Dependency that admits only users holding ``role`` in user_roles."""
	def dependency(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> User:
		if not any(r.role == role for r in _rows(db, user.id)):
			raise HTTPException(status_code=403, detail=f"{role.capitalize()} role required")
		return user
	return dependency


def _load_prefs(row: UserRole) -> Dict[str, Any]:
	try:
		return json.loads(row.preferences_json) if row.preferences_json else {}
	except ValueError:
		return {}


def _snapshot(user: User, rows: List[UserRole], *, with_preferences: bool = False) -> Dict[str, Any]:
	data: Dict[str, Any] = {
		"currentRole": user.current_role,
		"availableRoles": [r.role for r in rows],
	}
	if with_preferences:
		data["rolePreferences"] = {
			r.role: {"lastAccessed": r.last_accessed_at.isoformat(), "preferences": _load_prefs(r)} for r in rows
		}
	return data


def _ensure_base_role(db: Session, user: User, rows: List[UserRole]) -> List[UserRole]:
	if not any(r.role == BASE_ROLE for r in rows):
		row = UserRole(user_id=user.id, role=BASE_ROLE, last_accessed_at=datetime.utcnow())
		db.add(row)
		db.flush()
		rows = rows + [row]
	return rows


def _commit(db: Session) -> None:
	try:
		db.commit()
	except SQLAlchemyError:
		db.rollback()
		logger.exception("Role update failed")
		raise HTTPException(status_code=500, detail="Internal server error")


@router.get("")
def get_roles(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	rows = _rows(db, user.id)
	# No rows yet means a first-time user who has not picked a role
	if not rows:
		raise HTTPException(status_code=404, detail="User not found")
	return {
		"success": True,
		"currentRole": user.current_role,
		"roles": [r.role for r in rows],
		"rolePreferences": _snapshot(user, rows, with_preferences=True)["rolePreferences"],
	}


@router.post("")
def manage_roles(req: RoleAction, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	rows = _rows(db, user.id)
	by_role = {r.role: r for r in rows}
	now = datetime.utcnow()

	if req.action is None:
		if not (req.role and req.is_default):
			raise HTTPException(status_code=400, detail="Invalid action")
		row = by_role.get(req.role)
		if row is None:
			row = UserRole(user_id=user.id, role=req.role)
			db.add(row)
		row.preferences_json = json.dumps(req.preferences or {})
		row.last_accessed_at = now
		user.current_role = req.role
		db.flush()
		rows = _ensure_base_role(db, user, _rows(db, user.id))
		_commit(db)
		return {"success": True, "message": "User role created successfully", "data": _snapshot(user, rows)}

	rows = _ensure_base_role(db, user, rows)
	by_role = {r.role: r for r in rows}

	if req.action == "switch_role":
		if not req.role or req.role not in by_role:
			raise HTTPException(status_code=400, detail="Invalid role or role not available")
		user.current_role = req.role
		by_role[req.role].last_accessed_at = now
		_commit(db)
		return {"success": True, "message": "Role switched successfully", "data": _snapshot(user, rows)}

	if req.action == "add_role":
		if not req.role or req.role in by_role:
			raise HTTPException(status_code=400, detail="Invalid role or role already exists")
		row = UserRole(user_id=user.id, role=req.role, preferences_json=json.dumps(req.preferences or {}), last_accessed_at=now)
		db.add(row)
		_commit(db)
		return {"success": True, "message": "Role added successfully", "data": _snapshot(user, rows + [row])}

	if req.action == "remove_role":
		if not req.role or req.role == BASE_ROLE or req.role not in by_role:
			raise HTTPException(status_code=400, detail="Cannot remove student role or role not found")
		db.delete(by_role[req.role])
		if user.current_role == req.role:
			user.current_role = BASE_ROLE
		_commit(db)
		return {
			"success": True,
			"message": "Role removed successfully",
			"data": _snapshot(user, [r for r in rows if r.role != req.role]),
		}

	# update_preferences
	if not req.role or req.role not in by_role:
		raise HTTPException(status_code=400, detail="Invalid role")
	row = by_role[req.role]
	merged = {**_load_prefs(row), **(req.preferences or {})}
	row.preferences_json = json.dumps(merged)
	_commit(db)
	return {"success": True, "message": "Preferences updated successfully"}


@router.put("")
def replace_roles(req: RoleReplace, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	wanted = list(dict.fromkeys(req.available_roles))
	if BASE_ROLE not in wanted:
		wanted.append(BASE_ROLE)
	if req.current_role not in wanted:
		raise HTTPException(status_code=400, detail="Current role must be in available roles")
	now = datetime.utcnow()
	by_role = {r.role: r for r in _rows(db, user.id)}
	for role, row in by_role.items():
		if role not in wanted:
			db.delete(row)
	for role in wanted:
		row = by_role.get(role)
		if row is None:
			row = UserRole(user_id=user.id, role=role, last_accessed_at=now)
			db.add(row)
		prefs = req.role_preferences.get(role)
		if prefs is not None:
			row.preferences_json = json.dumps(prefs.get("preferences", prefs))
	user.current_role = req.current_role
	_commit(db)
	rows = _rows(db, user.id)
	return {
		"success": True,
		"message": "User roles updated successfully",
		"data": _snapshot(user, rows, with_preferences=True),
	}
