"""Modello per le categorie di spesa"""
from spese import db
from spese.defaults import COLORE_DEFAULT
from datetime import datetime


class Category(db.Model):
    """Categoria di spesa di un utente (es. "Food", "Transport")"""
    __tablename__ = 'categories'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    color = db.Column(db.String(20), nullable=False, default=COLORE_DEFAULT)
    icon = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('user_id', 'name', name='uix_categories_user_name'),
    )

    def __repr__(self):
        return f'<Category {self.name} user={self.user_id}>'
