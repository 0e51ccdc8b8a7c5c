"""
smart_wiki/routes/pages.py — read-only HTML pages

  /                                   — campaign list and transcript form
  /campaign/<id>                      — the storybook (all session recaps)
  /campaign/<id>/<kind-plural>        — one kind's wiki list
  /campaign/<id>/session/<sid>        — one session with quotes and links
"""

from flask import Blueprint, render_template, abort
from smart_wiki import db
from smart_wiki.errors import ValidationError
from smart_wiki.kinds import EntityKind, KIND_CONFIG
from smart_wiki.models import Campaign, SessionSummary

pages_bp = Blueprint('pages', __name__)


def _campaign_or_404(campaign_id):
    campaign = db.session.get(Campaign, campaign_id)
    if campaign is None:
        abort(404)
    return campaign


@pages_bp.route('/')
def index():
    campaigns = Campaign.query.order_by(Campaign.name).all()
    return render_template('index.html', campaigns=campaigns)


@pages_bp.route('/campaign/<int:campaign_id>')
def campaign_detail(campaign_id):
    campaign = _campaign_or_404(campaign_id)
    return render_template('campaign.html', campaign=campaign, kinds=KIND_CONFIG.values())


@pages_bp.route('/campaign/<int:campaign_id>/<kind_name>')
def entity_list(campaign_id, kind_name):
    campaign = _campaign_or_404(campaign_id)
    try:
        kind = EntityKind.parse(kind_name)
    except ValidationError:
        abort(404)
    entities = (kind.model.query
                .filter_by(campaign_id=campaign_id)
                .order_by(kind.name_column)
                .all())
    return render_template('entity_list.html', campaign=campaign, kind=kind,
                           label=KIND_CONFIG[kind]['label'], entities=entities)


@pages_bp.route('/campaign/<int:campaign_id>/session/<int:session_id>')
def session_detail(campaign_id, session_id):
    campaign = _campaign_or_404(campaign_id)
    sess = db.session.get(SessionSummary, session_id)
    if sess is None or sess.campaign_id != campaign.id:
        abort(404)
    return render_template('session_detail.html', campaign=campaign, sess=sess)
