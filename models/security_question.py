from datetime import datetime
from models.db import db

class SecurityQuestion(db.Model):
    __tablename__ = "security_questions"

    id = db.Column(db.Integer, primary_key=True)

    # one question per account
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), unique=True, nullable=False, index=True)
    question_text = db.Column(db.String(255), nullable=False)
    answer_hash = db.Column(db.String(255), nullable=False)

    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
