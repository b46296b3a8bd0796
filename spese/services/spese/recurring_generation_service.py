"""
Servizio che genera le occorrenze delle spese ricorrenti.

Per ogni template ricorrente crea, una sola volta ciascuna, tutte le
occorrenze mancanti con data <= now e dentro i limiti del template. La
generazione è idempotente: rieseguirla subito dopo non crea duplicati.
"""
import logging
from datetime import datetime

from spese import db
from spese.models.Expense import Expense, TYPE_ONE_TIME
from spese.services.spese.expense_store import ExpenseStore
from spese.services.spese.recurrence_policy import (
    as_date,
    next_occurrence_date,
    should_continue_generating,
)

logger = logging.getLogger(__name__)

STATUS_SUCCESS = 'success'
STATUS_PARTIAL = 'partial'


class RecurringGenerationService:
    """Genera le occorrenze mancanti dei template ricorrenti"""

    def __init__(self, store=None):
        self.store = store or ExpenseStore()

    def build_occurrence(self, template, occurrence_date):
        """Nuova occorrenza con i dati copiati dal template"""
        return Expense(
            user_id=template.user_id,
            category_id=template.category_id,
            amount=template.amount,
            title=template.title,
            description=template.description,
            date=occurrence_date,
            type=TYPE_ONE_TIME,
            parent_expense_id=template.id,
            is_auto_generated=True,
        )

    def generate_for_template(self, template, now):
        """Crea le occorrenze mancanti di un template fino a `now` incluso.

        Restituisce il numero di occorrenze create.
        """
        today = as_date(now)
        if not should_continue_generating(template, today):
            return 0

        # Ancoraggio: ultima occorrenza generata, altrimenti la data di inizio
        last_child = self.store.most_recent_child(template.id)
        anchor = last_child.date if last_child else template.recurring_start_date

        frequency = template.recurring_frequency
        end_date = template.recurring_end_date
        candidate = next_occurrence_date(anchor, frequency)
        created = 0

        while candidate is not None and candidate <= today:
            if self.store.find_child_occurrence(template.id, candidate) is None:
                if self.store.create_occurrence(self.build_occurrence(template, candidate)) is not None:
                    created += 1
                    logger.debug('Generated: %s for %s', template.title, candidate.isoformat())

            candidate = next_occurrence_date(candidate, frequency)

            # Non generare oltre la data di fine
            if end_date is not None and candidate is not None and candidate > end_date:
                break
            # Mai occorrenze future
            if candidate is not None and candidate > today:
                break

        return created

    def generate_for_template_id(self, template_id, now):
        """Come generate_for_template; un id inesistente o eliminato restituisce 0"""
        template = self.store.get_template(template_id)
        if template is None:
            logger.info('Recurring template %s not found or deleted, skipped', template_id)
            return 0
        return self.generate_for_template(template, now)

    def run(self, now=None):
        """Una run completa su tutti i template ricorrenti non eliminati.

        Un errore su un template viene registrato e la run prosegue con i
        successivi; solo un errore nel recupero dei template interrompe la run
        (viene registrato e rilanciato).
        """
        if now is None:
            now = datetime.now()
        started_at = datetime.utcnow()
        logger.info(
            'Starting recurring expense generation',
            extra={'event': 'recurring_generation.started', 'timestamp': started_at.isoformat()},
        )

        try:
            templates = self.store.find_recurring_templates(exclude_soft_deleted=True)
        except Exception:
            db.session.rollback()
            logger.exception(
                'Failed to generate recurring expenses',
                extra={'event': 'recurring_generation.failed', 'timestamp': datetime.utcnow().isoformat(),
                       'generated_count': 0},
            )
            raise

        generated_count = 0
        failed_templates = []
        for template in templates:
            # cattura l'id prima di un eventuale rollback che scade l'istanza
            template_id = template.id
            try:
                generated_count += self.generate_for_template(template, now)
            except Exception:
                db.session.rollback()
                failed_templates.append(template_id)
                logger.exception(
                    'Error generating occurrences for recurring expense %s', template_id,
                    extra={'event': 'recurring_generation.template_failed', 'template_id': template_id,
                           'timestamp': datetime.utcnow().isoformat()},
                )

        status = STATUS_PARTIAL if failed_templates else STATUS_SUCCESS
        finished_at = datetime.utcnow()
        logger.info(
            'Generated %s recurring expenses', generated_count,
            extra={'event': 'recurring_generation.completed', 'status': status,
                   'generated_count': generated_count, 'timestamp': finished_at.isoformat()},
        )
        return {
            'generated_count': generated_count,
            'templates_processed': len(templates),
            'failed_templates': failed_templates,
            'status': status,
            'started_at': started_at,
            'finished_at': finished_at,
        }


def run_recurring_generation(now=None):
    """Punto d'ingresso senza argomenti usato da scheduler, CLI e vista HTTP"""
    return RecurringGenerationService().run(now=now)
