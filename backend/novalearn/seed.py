from __future__ import annotations
import json
import logging

from sqlalchemy.orm import Session

from .models import EducationLevel, Subject, Topic

logger = logging.getLogger(__name__)

EDUCATION_LEVELS = [
	("primary", "Primary School", "Elementary education (Ages 6-11)"),
	("o_level", "O Level", "Ordinary Level (Ages 14-16)"),
	("a_level", "A Level", "Advanced Level (Ages 16-18)"),
	("undergraduate", "Undergraduate", "Bachelor's degree level"),
	("postgraduate", "Postgraduate", "Master's and PhD level"),
]

SUBJECTS = [
	("mathematics", "Mathematics", "Pure and applied mathematics"),
	("physics", "Physics", "Physical sciences and mechanics"),
	("chemistry", "Chemistry", "Chemical sciences and reactions"),
	("biology", "Biology", "Life sciences and biological systems"),
	("computer_science", "Computer Science", "Programming, algorithms, and computing"),
	("engineering", "Engineering", "Applied sciences and engineering principles"),
	("data_science", "Data Science", "Statistics, machine learning, and data analysis"),
	("artificial_intelligence", "Artificial Intelligence", "Machine learning, neural networks, and AI systems"),
	("cybersecurity", "Cybersecurity", "Information security and digital protection"),
	("environmental_science", "Environmental Science", "Earth systems and environmental studies"),
]

# (name, description, difficulty, minutes, objectives) for mathematics at O level
MATH_O_LEVEL_TOPICS = [
	("Algebra", "Linear equations, quadratic equations, and algebraic manipulation", 6, 120,
		["Solve linear equations", "Factor quadratic expressions", "Manipulate algebraic expressions"]),
	("Geometry", "Shapes, angles, area, and volume calculations", 5, 100,
		["Calculate areas and perimeters", "Understand geometric properties", "Apply Pythagoras theorem"]),
	("Statistics", "Data collection, analysis, and probability", 4, 80,
		["Interpret statistical data", "Calculate probability", "Create and read graphs"]),
]


def seed_reference_data(db: Session) -> int:
	"""Insert education levels, STEM subjects and sample topics that are missing. Safe to run repeatedly."""
	created = 0
	levels = {row.name: row for row in db.query(EducationLevel).all()}
	for name, display, description in EDUCATION_LEVELS:
		if name not in levels:
			levels[name] = EducationLevel(name=name, display_name=display, description=description)
			db.add(levels[name])
			created += 1
	subjects = {row.name: row for row in db.query(Subject).all()}
	for name, display, description in SUBJECTS:
		if name not in subjects:
			subjects[name] = Subject(name=name, display_name=display, description=description, category="STEM")
			db.add(subjects[name])
			created += 1
	db.flush()

	math = subjects["mathematics"]
	o_level = levels["o_level"]
	existing = {
		t.name for t in db.query(Topic).filter(Topic.subject_id == math.id, Topic.education_level_id == o_level.id).all()
	}
	for name, description, difficulty, minutes, objectives in MATH_O_LEVEL_TOPICS:
		if name in existing:
			continue
		db.add(Topic(
			name=name,
			description=description,
			subject_id=math.id,
			education_level_id=o_level.id,
			difficulty=difficulty,
			estimated_duration=minutes,
			learning_objectives_json=json.dumps(objectives),
		))
		created += 1
	db.commit()
	if created:
		logger.info("Seeded %d reference rows", created)
	return created
