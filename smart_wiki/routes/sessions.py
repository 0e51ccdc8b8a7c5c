"""
smart_wiki/routes/sessions.py — session summary detail, edit and AI enhance

  GET   /api/sessions/<id>          — session with linked entities
  PATCH /api/sessions/<id>          — edit title/chapterTitle/recap/outline/notes
  POST  /api/sessions/<id>/enhance  — fold curated notes into the session (AI)
"""

from flask import Blueprint, request, jsonify, current_app
from smart_wiki import db, limiter
from smart_wiki.ai_provider import is_ai_enabled, AIProviderError
from smart_wiki.errors import WikiError
from smart_wiki.extraction import enhance_session, validate_enhance_payload
from smart_wiki.fields import apply_fields, SESSION_TEXT_FIELDS
from smart_wiki.models import SessionSummary

sessions_bp = Blueprint('sessions', __name__, url_prefix='/api/sessions')


@sessions_bp.route('/<int:session_id>', methods=['GET'])
def get_session(session_id):
    sess = db.session.get(SessionSummary, session_id)
    if not sess:
        return jsonify({'error': 'Session not found.'}), 404
    return jsonify(sess.to_dict())


@sessions_bp.route('/<int:session_id>', methods=['PATCH'])
def update_session(session_id):
    sess = db.session.get(SessionSummary, session_id)
    if not sess:
        return jsonify({'error': 'Session not found.'}), 404
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Request must be JSON.'}), 400

    try:
        apply_fields(sess, data, SESSION_TEXT_FIELDS)
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception('Failed to update session %s', session_id)
        return jsonify({'error': 'Failed to update session.'}), 500

    return jsonify(sess.to_dict())


@sessions_bp.route('/<int:session_id>/enhance', methods=['POST'])
@limiter.limit(lambda: current_app.config['AI_RATE_LIMIT'])
def enhance(session_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Request must be JSON.'}), 400
    try:
        validate_enhance_payload(data)
    except WikiError as e:
        return jsonify({'error': str(e)}), e.status_code
    if not is_ai_enabled():
        return jsonify({'error': 'AI is not configured.'}), 403

    try:
        result = enhance_session(db.session, session_id, data)
    except WikiError as e:
        return jsonify({'error': str(e)}), e.status_code
    except AIProviderError as e:
        current_app.logger.error('Enhance failed for session %s: %s', session_id, e)
        return jsonify({'error': str(e)}), 500
    except Exception:
        db.session.rollback()
        current_app.logger.exception('Enhance failed for session %s', session_id)
        return jsonify({'error': 'Failed to enhance session.'}), 500

    return jsonify(result)
