"""
Trigger periodico della generazione delle spese ricorrenti.

Esegue il job a intervallo fisso in un thread daemon. Le run non si
sovrappongono mai: se un trigger scatta mentre la run precedente è ancora in
corso viene saltato (non accodato).
"""
import logging
import threading
from datetime import datetime

from spese.services.spese.recurring_generation_service import run_recurring_generation

logger = logging.getLogger(__name__)


class RecurringGenerationScheduler:

    def __init__(self, app, interval=3600, job=None):
        self.app = app
        self.interval = interval
        self.job = job or run_recurring_generation
        self._run_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread = None

    @property
    def is_running(self):
        """True mentre una run è in corso"""
        return self._run_lock.locked()

    def trigger(self):
        """Esegue una run se nessun'altra è in corso.

        Restituisce il risultato del job, oppure None se il trigger è stato
        saltato o la run è fallita.
        """
        if not self._run_lock.acquire(blocking=False):
            logger.info(
                'Recurring expense generation still running, trigger skipped',
                extra={'event': 'recurring_scheduler.skipped', 'timestamp': datetime.utcnow().isoformat()},
            )
            return None
        try:
            with self.app.app_context():
                result = self.job()
        except Exception:
            logger.exception(
                'Failed to generate recurring expenses',
                extra={'event': 'recurring_scheduler.failure', 'timestamp': datetime.utcnow().isoformat()},
            )
            return None
        finally:
            self._run_lock.release()

        logger.info(
            'Recurring expenses generated successfully',
            extra={'event': 'recurring_scheduler.success', 'timestamp': datetime.utcnow().isoformat(),
                   'generated_count': result.get('generated_count', 0)},
        )
        return result

    def _loop(self):
        while not self._stop_event.wait(self.interval):
            self.trigger()

    def start(self):
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name='recurring-generation', daemon=True)
        self._thread.start()

    def stop(self, timeout=None):
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
