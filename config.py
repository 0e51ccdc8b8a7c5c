import os

class Config:
    # The secret key is used by Flask to sign session cookies.
    # In production, SECRET_KEY must be set as an environment variable.
    SECRET_KEY = os.environ.get('SECRET_KEY')
    if not SECRET_KEY and os.environ.get('FLASK_ENV') != 'development':
        import warnings
        warnings.warn('SECRET_KEY not set, using insecure default. Set SECRET_KEY env var in production!')
        SECRET_KEY = 'dev-secret-key-not-for-production'
    elif not SECRET_KEY:
        SECRET_KEY = 'dev-secret-key-not-for-production'

    # DATABASE_URL may point at any SQLAlchemy URL (Postgres in Docker, etc.).
    # Locally, falls back to the instance/ folder next to this file.
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(os.path.abspath(os.path.dirname(__file__)), 'instance', 'smart_wiki.db')

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Default AI settings. Anything saved through /api/settings (AppSetting
    # table) wins over these, so the provider can be switched without a restart.
    AI_PROVIDER = os.environ.get('AI_PROVIDER', 'gemini')   # gemini / anthropic / ollama / none
    GEMINI_API_KEY = os.environ.get('GEMINI_API_KEY')
    GEMINI_MODEL = os.environ.get('GEMINI_MODEL', 'gemini-2.5-flash')
    ANTHROPIC_API_KEY = os.environ.get('ANTHROPIC_API_KEY')
    ANTHROPIC_MODEL = os.environ.get('ANTHROPIC_MODEL', 'claude-haiku-4-5-20251001')
    OLLAMA_URL = os.environ.get('OLLAMA_URL')
    OLLAMA_MODEL = os.environ.get('OLLAMA_MODEL', 'llama3.1')

    # Transcripts from a 4-hour session run long, but not unbounded
    MAX_TRANSCRIPT_CHARS = int(os.environ.get('MAX_TRANSCRIPT_CHARS', '400000'))

    # AI endpoints cost money per call, so they are rate limited per client IP
    AI_RATE_LIMIT = os.environ.get('AI_RATE_LIMIT', '10 per minute')
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')

    # Maximum request size (16 MB)
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024
