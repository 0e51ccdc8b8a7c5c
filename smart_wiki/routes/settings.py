"""
smart_wiki/routes/settings.py — AI provider settings

  GET  /api/settings  — effective AI settings (API keys masked)
  POST /api/settings  — store overrides in the AppSetting table

Only keys present in the POST body are written, so a client can change the
model without resending an API key.
"""

from flask import Blueprint, request, jsonify, current_app
from smart_wiki import db
from smart_wiki.ai_provider import (get_ai_config, get_available_providers, is_ai_enabled,
                                    PROVIDERS, FEATURE_KEYS)
from smart_wiki.models import AppSetting

settings_bp = Blueprint('settings', __name__, url_prefix='/api/settings')

SECRET_KEYS = ('gemini_api_key', 'anthropic_api_key')
PLAIN_KEYS = ('ai_provider', 'gemini_model', 'anthropic_model', 'ollama_url', 'ollama_model')


def _mask(secret):
    if not secret:
        return ''
    return '****' + secret[-4:] if len(secret) > 8 else '****'


@settings_bp.route('', methods=['GET'])
def get_settings():
    config = get_ai_config()
    for key in SECRET_KEYS:
        config[key] = _mask(config[key])
    config['ai_enabled'] = is_ai_enabled()
    config['available_providers'] = get_available_providers()
    return jsonify(config)


@settings_bp.route('', methods=['POST'])
def save_settings():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Request must be JSON.'}), 400

    allowed_providers = PROVIDERS + ('none', 'default')
    if 'ai_provider' in data and data['ai_provider'] not in PROVIDERS + ('none',):
        return jsonify({'error': f'Unknown AI provider: {data["ai_provider"]}'}), 400
    for feature in FEATURE_KEYS:
        value = data.get(f'ai_feature_{feature}')
        if value is not None and value not in allowed_providers:
            return jsonify({'error': f'Unknown AI provider for {feature}: {value}'}), 400

    try:
        for key in PLAIN_KEYS + SECRET_KEYS:
            if key in data:
                AppSetting.set(key, str(data[key] or '').strip())
        for feature in FEATURE_KEYS:
            key = f'ai_feature_{feature}'
            if key in data:
                AppSetting.set(key, data[key] or 'default')
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception('Failed to save settings')
        return jsonify({'error': 'Failed to save settings.'}), 500

    current_app.logger.info('AI settings updated: %s', sorted(k for k in data if k not in SECRET_KEYS))
    return jsonify({'message': 'Settings saved.'})
