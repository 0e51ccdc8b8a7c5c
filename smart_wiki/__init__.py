from flask import Flask, jsonify, request
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from sqlalchemy import event
from config import Config
import markdown as _md
import os

# App version, shown in the page footer
APP_VERSION = '0.4.0'

# Create the database object here, but don't attach it to an app yet.
# create_app() binds it once; handlers pass db.session into the services.
db = SQLAlchemy()

# Migrate tracks schema changes and applies them incrementally
migrate = Migrate()

# Rate limiter for the AI endpoints (in-memory storage, single server)
limiter = Limiter(key_func=get_remote_address, default_limits=[])


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute('PRAGMA foreign_keys=ON')
    cursor.close()


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Attach the database and migration engine to this app instance
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    # SQLite ignores FOREIGN KEY clauses unless asked per connection
    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite'):
        with app.app_context():
            event.listen(db.engine, 'connect', _enable_sqlite_foreign_keys)

    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite:///'):
        db_path = app.config['SQLALCHEMY_DATABASE_URI'][len('sqlite:///'):]
        if db_path and db_path != ':memory:':
            os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)

    # Register the 'md' Jinja2 filter, converts Markdown text to HTML
    # Usage in templates: {{ session.recap | md | safe }}
    @app.template_filter('md')
    def markdown_filter(text):
        if not text:
            return ''
        return _md.markdown(text, extensions=['nl2br', 'tables', 'fenced_code'])

    # Register Blueprints, each Blueprint is a group of related routes
    from smart_wiki.routes.pages import pages_bp
    from smart_wiki.routes.campaigns import campaigns_bp
    from smart_wiki.routes.characters import characters_bp
    from smart_wiki.routes.locations import locations_bp
    from smart_wiki.routes.organizations import organizations_bp
    from smart_wiki.routes.items import items_bp
    from smart_wiki.routes.lore import lore_bp
    from smart_wiki.routes.sessions import sessions_bp
    from smart_wiki.routes.generate import generate_bp
    from smart_wiki.routes.settings import settings_bp

    app.register_blueprint(pages_bp)
    app.register_blueprint(campaigns_bp)
    app.register_blueprint(characters_bp)
    app.register_blueprint(locations_bp)
    app.register_blueprint(organizations_bp)
    app.register_blueprint(items_bp)
    app.register_blueprint(lore_bp)
    app.register_blueprint(sessions_bp)
    app.register_blueprint(generate_bp)
    app.register_blueprint(settings_bp)

    # API clients expect {"error": ...} bodies, never Flask's HTML error pages
    def _api_error(code, message):
        def handler(e):
            if request.path.startswith('/api/'):
                return jsonify({'error': message}), code
            return e
        return handler

    app.register_error_handler(404, _api_error(404, 'Not found.'))
    app.register_error_handler(405, _api_error(405, 'Method not allowed.'))
    app.register_error_handler(429, _api_error(429, 'Too many AI requests. Wait a minute and try again.'))

    @app.errorhandler(500)
    def internal_error(e):
        db.session.rollback()
        if request.path.startswith('/api/'):
            return jsonify({'error': 'An unexpected server error occurred.'}), 500
        return e

    @app.context_processor
    def inject_app_version():
        return dict(app_version=APP_VERSION)

    @app.context_processor
    def inject_ai_status():
        from smart_wiki.ai_provider import is_ai_enabled
        try:
            return dict(ai_enabled=is_ai_enabled())
        except Exception:
            return dict(ai_enabled=False)

    # CLI command: flask init-db
    # Creates all tables directly. Use `flask db upgrade` for migrated installs.
    @app.cli.command('init-db')
    def init_db():
        """Create all database tables from the current models."""
        from smart_wiki import models  # noqa: F401  registers the tables
        db.create_all()
        print('Database tables created.')

    return app
