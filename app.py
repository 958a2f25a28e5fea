import logging
import os
from datetime import date

import click
from flask import Flask, request
from werkzeug.exceptions import HTTPException

from auth import authenticate_bearer
from models import db
from responses import ApiError, api_response
from routes import register_blueprints
from services.scheduler import SubscriptionScheduler, process_subscriptions


def _env_flag(name, default):
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes')


def create_app(test_config=None):
    app = Flask(__name__)
    app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL', 'sqlite:///budget_buddy.db')
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'dev-secret-key-change-me')
    app.config['MAIL_SERVICE_ADDRESS'] = os.environ.get('MAIL_SERVICE_ADDRESS')
    app.config['MAIL_SERVICE_TIMEOUT'] = float(os.environ.get('MAIL_SERVICE_TIMEOUT', 5))
    app.config['PASSWORD_RESET_TTL_MINUTES'] = int(os.environ.get('PASSWORD_RESET_TTL_MINUTES', 24 * 60))
    app.config['SCHEDULER_ENABLED'] = _env_flag('SCHEDULER_ENABLED', 'true')
    app.config['SUBSCRIPTION_JOB_HOUR'] = int(os.environ.get('SUBSCRIPTION_JOB_HOUR', 3))
    app.config['LOG_LEVEL'] = os.environ.get('LOG_LEVEL', 'INFO')
    if test_config:
        app.config.update(test_config)

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )

    db.init_app(app)
    with app.app_context():
        db.create_all()

    app.before_request(authenticate_bearer)
    register_blueprints(app)
    register_error_handlers(app)
    register_request_logging(app)
    register_commands(app)

    if app.config['SCHEDULER_ENABLED'] and not app.testing:
        scheduler = SubscriptionScheduler(app, hour=app.config['SUBSCRIPTION_JOB_HOUR'])
        scheduler.start()
        app.extensions['subscription_scheduler'] = scheduler
    return app


# ---------------------- Error Handlers ----------------------
def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(error):
        return error.to_response()

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return api_response(status=error.code, message=error.description)

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        db.session.rollback()
        app.logger.exception('Unhandled error on %s %s', request.method, request.path)
        return api_response(status=500, message='Something went wrong on our side')


# ---------------------- Request Logging ----------------------
def register_request_logging(app):
    @app.after_request
    def log_request(response):
        level = logging.INFO
        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = logging.WARNING
        app.logger.log(level, '%s %s %s %s', request.method, request.full_path.rstrip('?'),
                       response.status_code, request.remote_addr)
        return response


# ---------------------- CLI ----------------------
def register_commands(app):
    @app.cli.command('process-subscriptions')
    @click.option('--date', 'run_date', default=None, help='Day to process (YYYY-MM-DD), defaults to today.')
    def process_subscriptions_command(run_date):
        """Turn today's due subscriptions into transactions."""
        day = date.fromisoformat(run_date) if run_date else None
        created = process_subscriptions(day)
        if created is None:
            click.echo('Subscriptions were already processed for this day.')
        else:
            click.echo(f'Processed {len(created)} subscriptions.')


# ---------------------- Run App ----------------------
if __name__ == '__main__':
    app = create_app()
    app.run(host='0.0.0.0', port=int(os.environ.get('PORT', 8080)), debug=False)
