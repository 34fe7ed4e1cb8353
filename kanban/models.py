from flask_sqlalchemy import SQLAlchemy
from datetime import datetime
from sqlalchemy.orm import declared_attr

db = SQLAlchemy()


class KanbanMixin:
    """Adds the two kanban columns to any model that opts into the board.

    ``kanban_order_rank`` is an opaque LexoRank key. It is assigned by the
    board's mapper events and never edited directly by users.
    """

    @declared_attr
    def kanban_status(cls):
        return db.Column(db.String(100), nullable=True, index=True)

    @declared_attr
    def kanban_order_rank(cls):
        return db.Column(db.String(255), nullable=True, index=True)

    def kanban_fields(self):
        return {
            'kanban_status': self.kanban_status,
            'kanban_order_rank': self.kanban_order_rank,
        }


class User(db.Model):
    '''Admin user; the board only reads permission flags from it'''
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False, default="")
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_admin = db.Column(db.Boolean, nullable=False, default=False)
    can_reorder = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self):
        return f"<User {self.username}>"

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'is_admin': self.is_admin,
            'can_reorder': self.can_reorder,
        }


class Post(KanbanMixin, db.Model):
    """Demo collection shown on the board."""
    __tablename__ = "posts"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=True)
    body = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Post {self.id} - {self.kanban_status} - {self.kanban_order_rank}>"

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'body': self.body,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
            **self.kanban_fields(),
        }
