"""Blueprint JSON per la gestione delle spese ricorrenti."""
from datetime import date

from flask import Blueprint, current_app, jsonify, request

from spese.models.Expense import TYPE_RECURRING
from spese.services.spese.expense_service import ExpenseService
from spese.services.spese.recurring_generation_service import (
    RecurringGenerationService,
    run_recurring_generation,
)
from spese.utils import ValidationUtils
from spese.utils.formatting import format_currency

ricorrenti_bp = Blueprint('ricorrenti', __name__)
service = ExpenseService()
generation_service = RecurringGenerationService()


def _serialize(expense, occurrences=None):
    data = {
        'id': expense.id,
        'user_id': expense.user_id,
        'category_id': expense.category_id,
        'amount': str(expense.amount),
        'amount_formatted': format_currency(expense.amount),
        'title': expense.title,
        'description': expense.description,
        'date': expense.date.isoformat(),
        'type': expense.type,
        'recurring_frequency': expense.recurring_frequency,
        'recurring_start_date': expense.recurring_start_date.isoformat() if expense.recurring_start_date else None,
        'recurring_end_date': expense.recurring_end_date.isoformat() if expense.recurring_end_date else None,
        'parent_expense_id': expense.parent_expense_id,
        'is_auto_generated': bool(expense.is_auto_generated),
    }
    if occurrences is not None:
        data['occurrences'] = [o.date.isoformat() for o in occurrences]
    return data


def _payload():
    return request.get_json(silent=True) or request.form.to_dict()


def _get_template(ricorrente_id):
    expense = service.get_by_id(ricorrente_id)
    if expense is None or expense.type != TYPE_RECURRING:
        return None
    return expense


@ricorrenti_bp.route('/')
def lista():
    """Template ricorrenti dell'utente (?user_id=) con le date generate"""
    user_id = request.args.get('user_id', type=int)
    if user_id is None:
        return jsonify({'success': False, 'message': 'user_id is required'}), 400
    ricorrenti = service.list_recurring(user_id)
    return jsonify({
        'success': True,
        'ricorrenti': [_serialize(r, service.get_occurrences(r.id)) for r in ricorrenti],
    })


@ricorrenti_bp.route('/aggiungi', methods=['POST'])
def aggiungi():
    """Crea un template ricorrente e genera subito le occorrenze già dovute"""
    data = _payload()
    try:
        user_id = int(data.pop('user_id', None))
    except (TypeError, ValueError):
        return jsonify({'success': False, 'message': 'A numeric user_id is required'}), 400
    data['type'] = TYPE_RECURRING
    data.setdefault('date', data.get('recurring_start_date'))

    success, message, ricorrente = service.create_expense(user_id, **data)
    if not success:
        return jsonify({'success': False, 'message': message}), 400

    created = 0
    try:
        created = generation_service.generate_for_template(ricorrente, date.today())
    except Exception:
        current_app.logger.exception('Recurring expense %s created but generation failed', ricorrente.id)
    return jsonify({
        'success': True,
        'message': message,
        'generated_count': created,
        'ricorrente': _serialize(ricorrente),
    }), 201


@ricorrenti_bp.route('/dati/<int:ricorrente_id>')
def dati(ricorrente_id):
    """Restituisce i dati di un template ricorrente in formato JSON"""
    ricorrente = _get_template(ricorrente_id)
    if not ricorrente:
        return jsonify({'success': False, 'message': 'Recurring expense not found'}), 404
    return jsonify({
        'success': True,
        'ricorrente': _serialize(ricorrente, service.get_occurrences(ricorrente.id)),
    })


@ricorrenti_bp.route('/elimina/<int:ricorrente_id>', methods=['POST'])
def elimina(ricorrente_id):
    """Elimina il template e tutte le spese generate"""
    if not _get_template(ricorrente_id):
        return jsonify({'success': False, 'message': 'Recurring expense not found'}), 404
    success, message = service.delete_expense(ricorrente_id)
    return jsonify({'success': success, 'message': message}), (200 if success else 500)


@ricorrenti_bp.route('/archivia/<int:ricorrente_id>', methods=['POST'])
def archivia(ricorrente_id):
    """Soft-delete: il template esce dalla generazione, le spese generate restano"""
    if not _get_template(ricorrente_id):
        return jsonify({'success': False, 'message': 'Recurring expense not found'}), 404
    success, message = service.soft_delete_expense(ricorrente_id)
    return jsonify({'success': success, 'message': message}), (200 if success else 500)


@ricorrenti_bp.route('/genera', methods=['POST'])
def genera():
    """Esegue una run di generazione (data di riferimento opzionale `date`)"""
    data = _payload()
    try:
        now = ValidationUtils.validate_optional_date(data.get('date'))
    except ValueError as e:
        return jsonify({'success': False, 'message': str(e)}), 400

    try:
        result = run_recurring_generation(now=now)
    except Exception as e:
        current_app.logger.exception('Recurring expense generation failed')
        return jsonify({'success': False, 'message': str(e)}), 500

    return jsonify({
        'success': True,
        'generated_count': result['generated_count'],
        'templates_processed': result['templates_processed'],
        'failed_templates': result['failed_templates'],
        'status': result['status'],
    })
