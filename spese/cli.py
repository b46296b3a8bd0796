"""Comando per generare le spese ricorrenti mancanti.

Uso (stesso ambiente dell'app Flask, usa create_app()):
  spese-genera-ricorrenti                  : genera fino alla data odierna
  spese-genera-ricorrenti --date 2025-01-31: usa una data di riferimento diversa
  spese-genera-ricorrenti --template-id 7  : genera solo per il template indicato

Exit code 0 in caso di successo (anche con 0 spese generate), 1 se la run fallisce.
"""
import argparse
import logging
import sys
from datetime import date

from spese import create_app
from spese.utils import ValidationUtils


def main(argv=None, config_name='default'):
    parser = argparse.ArgumentParser(description='Generate recurring expenses based on their schedule')
    parser.add_argument('--date', help='Data di riferimento YYYY-MM-DD (default: oggi)')
    parser.add_argument('--template-id', type=int, help='Genera solo per questo template ricorrente')
    args = parser.parse_args(argv)

    try:
        now = ValidationUtils.validate_date(args.date) if args.date else date.today()
    except ValueError as e:
        parser.error(str(e))

    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    app = create_app(config_name, start_scheduler=False)
    with app.app_context():
        from spese.services.spese.recurring_generation_service import RecurringGenerationService
        svc = RecurringGenerationService()

        print('Starting to generate recurring expenses...')
        try:
            if args.template_id is not None:
                generated = svc.generate_for_template_id(args.template_id, now)
            else:
                generated = svc.run(now=now)['generated_count']
        except Exception as e:
            print(f'Failed to generate recurring expenses: {e}', file=sys.stderr)
            return 1

        print(f'Successfully generated {generated} recurring expenses')
    return 0


if __name__ == '__main__':
    sys.exit(main())
