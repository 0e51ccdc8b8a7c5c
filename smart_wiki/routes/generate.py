"""
smart_wiki/routes/generate.py — transcript → wiki endpoint

  POST /api/generate  {"transcript": "...", "campaignName": "..."}

Runs one AI extraction and saves the campaign, entities and a new session.
If no AI provider is configured, returns a 403.
"""

from flask import Blueprint, request, jsonify, current_app
from smart_wiki import db, limiter
from smart_wiki.ai_provider import is_ai_enabled, AIProviderError
from smart_wiki.errors import WikiError
from smart_wiki.extraction import (generate_session, validate_transcript, ExtractionParseError,
                                   PARSE_ERROR_MESSAGE)

generate_bp = Blueprint('generate', __name__, url_prefix='/api')


@generate_bp.route('/generate', methods=['POST'])
@limiter.limit(lambda: current_app.config['AI_RATE_LIMIT'])
def generate():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Request must be JSON.'}), 400
    try:
        transcript, campaign_name = validate_transcript(data.get('transcript'), data.get('campaignName'))
    except WikiError as e:
        return jsonify({'error': str(e)}), e.status_code

    if not is_ai_enabled():
        return jsonify({'error': 'AI is not configured.'}), 403

    try:
        result = generate_session(db.session, transcript, campaign_name)
    except WikiError as e:
        return jsonify({'error': str(e)}), e.status_code
    except ExtractionParseError:
        return jsonify({'error': PARSE_ERROR_MESSAGE}), 500
    except AIProviderError as e:
        current_app.logger.error('Transcript extraction failed: %s', e)
        return jsonify({'error': str(e)}), 500
    except Exception:
        db.session.rollback()
        current_app.logger.exception('Failed to save the extracted session')
        return jsonify({'error': 'An error occurred saving the session.'}), 500

    return jsonify(result)
