"""
smart_wiki/ai_provider.py — Provider-agnostic AI abstraction layer

Supports three backends:
  - Gemini (cloud) — uses the google-genai SDK with safety thresholds
  - Anthropic (cloud) — uses the official anthropic Python SDK
  - Ollama (local, free) — talks to the Ollama REST API

Defaults come from the app config (environment variables). Rows in the
AppSetting table override them, so the provider can be changed from the
browser without restarting the app.

Public functions:
  is_ai_enabled()        — True if a provider is configured and ready
  get_ai_config()        — dict of current AI settings
  get_feature_provider() — provider for one feature ('generate', 'enhance')
  ai_chat(...)           — send a prompt and get a response string back

There are no retries: a failed call raises AIProviderError once.
"""

import json
import requests
from flask import current_app


class AIProviderError(Exception):
    """Raised when an AI provider call fails."""
    pass


PROVIDERS = ('gemini', 'anthropic', 'ollama')

# Feature keys used for per-feature provider overrides
FEATURE_KEYS = ('generate', 'enhance')

# Every harm category is blocked at medium probability and above
SAFETY_CATEGORIES = (
    'HARM_CATEGORY_HARASSMENT',
    'HARM_CATEGORY_HATE_SPEECH',
    'HARM_CATEGORY_SEXUALLY_EXPLICIT',
    'HARM_CATEGORY_DANGEROUS_CONTENT',
)
SAFETY_THRESHOLD = 'BLOCK_MEDIUM_AND_ABOVE'


def _get_settings():
    """Read AI settings from the database. Returns a dict."""
    from smart_wiki.models import AppSetting
    return AppSetting.get_all_dict()


def get_ai_config():
    """Return a dict of current AI settings, DB values over config defaults."""
    settings = _get_settings()
    cfg = current_app.config
    return {
        'provider': settings.get('ai_provider') or cfg.get('AI_PROVIDER') or 'none',
        'gemini_api_key': settings.get('gemini_api_key') or cfg.get('GEMINI_API_KEY') or '',
        'gemini_model': settings.get('gemini_model') or cfg.get('GEMINI_MODEL') or 'gemini-2.5-flash',
        'anthropic_api_key': settings.get('anthropic_api_key') or cfg.get('ANTHROPIC_API_KEY') or '',
        'anthropic_model': settings.get('anthropic_model') or cfg.get('ANTHROPIC_MODEL')
                           or 'claude-haiku-4-5-20251001',
        'ollama_url': settings.get('ollama_url') or cfg.get('OLLAMA_URL') or '',
        'ollama_model': settings.get('ollama_model') or cfg.get('OLLAMA_MODEL') or 'llama3.1',
        'feature_overrides': {
            key: settings.get(f'ai_feature_{key}', 'default') or 'default'
            for key in FEATURE_KEYS
        },
    }


def _provider_ready(config, provider):
    if provider == 'gemini':
        return bool(config['gemini_api_key'])
    elif provider == 'anthropic':
        return bool(config['anthropic_api_key'])
    elif provider == 'ollama':
        return bool(config['ollama_url'])
    return False


def is_ai_enabled():
    """Check if the active AI provider is configured and could work."""
    config = get_ai_config()
    return _provider_ready(config, config['provider'])


def get_available_providers():
    """Return list of all providers that have credentials configured."""
    config = get_ai_config()
    return [p for p in PROVIDERS if _provider_ready(config, p)]


def get_feature_provider(feature_key):
    """Return the effective AI provider for a specific feature.

    Each feature can be individually assigned to a provider. If set to
    'default' (or not set), the global provider is used.
    """
    config = get_ai_config()
    override = config['feature_overrides'].get(feature_key, 'default')
    if override and override != 'default':
        return override
    return config['provider']


def ai_chat(system_prompt, messages, max_tokens=1024, json_mode=False, provider=None):
    """Send a chat request to the configured AI provider.

    Args:
        system_prompt: The system instruction string.
        messages: List of dicts with 'role' and 'content' keys.
                  Usually just [{'role': 'user', 'content': '...'}].
        max_tokens: Maximum response length.
        json_mode: If True, ask the model for JSON output only. Gemini uses
                   response_mime_type, Ollama uses format="json", Anthropic
                   relies on the prompt.
        provider: Optional override ('gemini', 'anthropic' or 'ollama'). If
                  None, uses the active provider from settings.

    Returns:
        The assistant's response as a plain string (may be empty).

    Raises:
        AIProviderError: If no provider is configured or the call fails.
    """
    config = get_ai_config()
    effective_provider = provider or config['provider']
    current_app.logger.info('AI call: provider=%s json_mode=%s', effective_provider, json_mode)

    if effective_provider == 'gemini':
        return _call_gemini(config, system_prompt, messages, max_tokens, json_mode=json_mode)
    elif effective_provider == 'anthropic':
        return _call_anthropic(config, system_prompt, messages, max_tokens)
    elif effective_provider == 'ollama':
        return _call_ollama(config, system_prompt, messages, json_mode=json_mode)
    else:
        raise AIProviderError('No AI provider configured. Use /api/settings to set one up.')


def _call_gemini(config, system_prompt, messages, max_tokens, json_mode=False):
    """Call the Google Gemini API."""
    api_key = config['gemini_api_key']
    if not api_key:
        raise AIProviderError('Gemini API key is not set. Add it with /api/settings or GEMINI_API_KEY.')

    from google import genai
    from google.genai import types

    safety_settings = [
        types.SafetySetting(
            category=getattr(types.HarmCategory, category),
            threshold=getattr(types.HarmBlockThreshold, SAFETY_THRESHOLD),
        )
        for category in SAFETY_CATEGORIES
    ]
    generate_config = types.GenerateContentConfig(
        system_instruction=system_prompt,
        temperature=0.7,
        max_output_tokens=max_tokens,
        safety_settings=safety_settings,
        response_mime_type='application/json' if json_mode else None,
    )
    # Gemini calls the assistant role "model"
    contents = [
        types.Content(
            role='model' if msg['role'] == 'assistant' else 'user',
            parts=[types.Part(text=msg['content'])],
        )
        for msg in messages
    ]

    try:
        client = genai.Client(api_key=api_key)
        response = client.models.generate_content(
            model=config['gemini_model'],
            contents=contents,
            config=generate_config,
        )
        return (response.text or '').strip()
    except Exception as e:
        error_msg = str(e)
        if 'api key' in error_msg.lower() or 'api_key' in error_msg.lower():
            raise AIProviderError('Invalid Gemini API key. Check your key in settings.')
        raise AIProviderError(f'Gemini API error: {error_msg}')


def _call_anthropic(config, system_prompt, messages, max_tokens):
    """Call the Anthropic Claude API."""
    api_key = config['anthropic_api_key']
    if not api_key:
        raise AIProviderError('Anthropic API key is not set. Add it with /api/settings or ANTHROPIC_API_KEY.')

    import anthropic
    try:
        client = anthropic.Anthropic(api_key=api_key)
        response = client.messages.create(
            model=config['anthropic_model'],
            max_tokens=max_tokens,
            system=system_prompt,
            messages=messages,
        )
        if not response.content:
            return ''
        return response.content[0].text.strip()
    except Exception as e:
        error_msg = str(e)
        if 'authentication' in error_msg.lower() or 'api_key' in error_msg.lower():
            raise AIProviderError('Invalid Anthropic API key. Check your key in settings.')
        raise AIProviderError(f'Anthropic API error: {error_msg}')


def _call_ollama(config, system_prompt, messages, json_mode=False):
    """Call the Ollama REST API."""
    if not config['ollama_url']:
        raise AIProviderError('Ollama URL is not set. Add it with /api/settings or OLLAMA_URL.')
    url = config['ollama_url'].rstrip('/')
    model = config['ollama_model'] or 'llama3.1'

    # Ollama expects messages in OpenAI format
    ollama_messages = [{'role': 'system', 'content': system_prompt}]
    for msg in messages:
        ollama_messages.append({'role': msg['role'], 'content': msg['content']})

    payload = {
        'model': model,
        'messages': ollama_messages,
        'stream': False,
        'keep_alive': '30m',  # Keep model loaded in VRAM for 30 min
    }
    if json_mode:
        payload['format'] = 'json'

    try:
        resp = requests.post(
            f'{url}/api/chat',
            json=payload,
            timeout=600,  # transcripts are long; first request also loads the model
        )
        # Ollama returns 404 when the model isn't pulled
        if resp.status_code == 404:
            raise AIProviderError(
                f'Model "{model}" not found on Ollama server. '
                f'Pull it first: ollama pull {model}'
            )
        resp.raise_for_status()
        data = resp.json()
        return (data.get('message', {}).get('content') or '').strip()
    except AIProviderError:
        raise  # Re-raise our own errors without wrapping
    except requests.ConnectionError:
        raise AIProviderError(
            f'Cannot connect to Ollama at {url}. '
            'Make sure the Ollama server is running.'
        )
    except requests.Timeout:
        raise AIProviderError('Ollama request timed out. The model may be loading or the server is slow.')
    except requests.HTTPError as e:
        raise AIProviderError(f'Ollama returned an error: {e}')
    except (KeyError, json.JSONDecodeError) as e:
        raise AIProviderError(f'Unexpected response from Ollama: {e}')
