"""
Modello per le spese

La stessa tabella contiene tre tipi di record:
- spese singole inserite dall'utente (type='one-time')
- template ricorrenti (type='recurring'): non sono una spesa, descrivono la
  ricorrenza tramite recurring_frequency / recurring_start_date /
  recurring_end_date
- occorrenze generate dal sistema: type='one-time', is_auto_generated=True e
  parent_expense_id che punta al template
"""
from spese import db
from datetime import datetime

TYPE_ONE_TIME = 'one-time'
TYPE_RECURRING = 'recurring'
EXPENSE_TYPES = (TYPE_ONE_TIME, TYPE_RECURRING)


class Expense(db.Model):
    __tablename__ = 'expenses'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    date = db.Column(db.Date, nullable=False)
    type = db.Column(db.String(20), nullable=False, default=TYPE_ONE_TIME)  # 'one-time' o 'recurring'

    # Campi valorizzati solo per i template ricorrenti
    recurring_frequency = db.Column(db.String(20), nullable=True)  # daily / weekly / monthly / yearly
    recurring_start_date = db.Column(db.Date, nullable=True)
    recurring_end_date = db.Column(db.Date, nullable=True)

    # Occorrenze generate: riferimento al template di origine
    parent_expense_id = db.Column(db.Integer, db.ForeignKey('expenses.id'), nullable=True)
    is_auto_generated = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = db.Column(db.DateTime, nullable=True)  # NULL = record attivo

    category = db.relationship('Category', backref=db.backref('expenses', lazy=True))

    __table_args__ = (
        # al massimo una occorrenza attiva per (template, data); NULL non collide
        db.Index(
            'uix_expenses_parent_date_active', 'parent_expense_id', 'date', unique=True,
            sqlite_where=db.text('deleted_at IS NULL'),
            postgresql_where=db.text('deleted_at IS NULL'),
        ),
        db.Index('ix_expenses_user_date', 'user_id', 'date'),
        db.Index('ix_expenses_user_type', 'user_id', 'type'),
    )

    @property
    def is_recurring(self):
        return self.type == TYPE_RECURRING

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    @classmethod
    def active(cls):
        """Query sulle spese non eliminate (soft-delete)"""
        return cls.query.filter(cls.deleted_at.is_(None))

    @classmethod
    def spending(cls):
        """Spese attive che contano come uscita: i template ricorrenti sono esclusi"""
        return cls.active().filter(cls.type == TYPE_ONE_TIME)

    def __repr__(self):
        return f'<Expense {self.title}: {self.amount} {self.date} ({self.type})>'
