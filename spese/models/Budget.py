"""
Modello per i budget mensili (per categoria o complessivi)
"""
from spese import db
from datetime import datetime


class Budget(db.Model):
    """Budget di un utente per un mese; category_id NULL = budget complessivo"""
    __tablename__ = 'budgets'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    month = db.Column(db.Integer, nullable=False)
    year = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = db.relationship('Category', backref=db.backref('budgets', lazy=True))

    __table_args__ = (
        db.UniqueConstraint('user_id', 'category_id', 'month', 'year', name='uix_budgets_user_category_month_year'),
    )

    def __repr__(self):
        return f'<Budget user={self.user_id} category={self.category_id} {self.year}-{self.month} amount={self.amount}>'
