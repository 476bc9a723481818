from __future__ import annotations

from sqlalchemy.orm import validates

from .app import db
from .constants import DEFAULT_ROLE


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(120), default="")
    last_name = db.Column(db.String(120), default="")
    affiliation = db.Column(db.String(255), default="")
    role = db.Column(db.String(32), nullable=False, default=DEFAULT_ROLE)
    approved = db.Column(db.Boolean, nullable=False, default=False)
    showed_up = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    __table_args__ = (
        db.Index("ix_users_email_lower", db.func.lower(email), unique=True),
    )

    @validates("email")
    def lower_email(self, key, value):  # pragma: no cover - simple normalizer
        return value.lower()

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def display_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p) or self.email
