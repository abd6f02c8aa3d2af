"""
HTTP adapter for the agent.

Flask views are synchronous, the agent is asyncio based: the agent lives on
one background event loop thread and views submit work to it. Every agent
call goes through the loop, so the knowledge base and session table are only
ever touched from that one thread.
"""

import asyncio
import logging
import threading
from typing import Optional

from flask import Flask, jsonify, request

from .chatbot import SelfAIAgent
from .config import Settings, get_settings, setup_logging, validate_config
from .error_handling import ConfigurationError, SelfAIError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 30


class AgentLoop:
    """Runs an agent on a dedicated event loop thread."""

    def __init__(self, agent: SelfAIAgent):
        self.agent = agent
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name="selfai-agent-loop", daemon=True)
        self._thread.start()
        self.call(agent.start())

    def _run(self):
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    def call(self, coro, timeout: float = REQUEST_TIMEOUT_SECONDS):
        """Run a coroutine on the agent loop and wait for its result."""
        future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        return future.result(timeout)

    def run(self, func, *args, timeout: float = REQUEST_TIMEOUT_SECONDS):
        """Run a plain agent method on the loop thread and wait for its result."""
        async def invoke():
            return func(*args)
        return self.call(invoke(), timeout)

    def shutdown(self):
        self.call(self.agent.stop())
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(timeout=5)


def check_settings(settings: Settings) -> None:
    """Refuse to serve with settings that fail validation."""
    result = validate_config(settings)
    if result.is_valid:
        return

    for error in result.errors:
        logger.error(f"Config error at {error.field_path}: {error.message}")
    raise ConfigurationError(result.get_summary(), {
        'errors': [f"{e.field_path}: {e.message}" for e in result.errors]
    })


def create_app(agent: Optional[SelfAIAgent] = None, settings: Optional[Settings] = None) -> Flask:
    """Build the Flask app around an agent."""
    settings = settings or (agent.settings if agent else get_settings())
    check_settings(settings)
    agent = agent or SelfAIAgent(settings)
    runner = AgentLoop(agent)

    app = Flask(__name__)
    app.config['DEBUG'] = settings.debug_mode
    app.extensions['selfai'] = runner

    @app.route('/chat', methods=['POST'])
    def chat():
        data = request.get_json(silent=True) or {}
        message = data.get('message')
        session_id = data.get('session_id') or 'default'

        if not message:
            return jsonify({'error': 'No message provided'}), 400

        response = runner.call(agent.process(str(session_id), message))
        return jsonify({'session_id': session_id, **response.to_dict()})

    @app.route('/sessions/<session_id>/clear', methods=['POST'])
    def clear_session(session_id):
        if not runner.call(agent.clear_session(session_id)):
            return jsonify({'error': f'Unknown session: {session_id}'}), 404
        return jsonify({'session_id': session_id, 'cleared': True})

    @app.route('/sessions/<session_id>/history', methods=['GET'])
    def session_history(session_id):
        summary = runner.run(agent.get_session_summary, session_id)
        if summary is None:
            return jsonify({'error': f'Unknown session: {session_id}'}), 404
        return jsonify({
            'session_id': session_id,
            'messages': runner.run(agent.get_history, session_id),
            'summary': summary
        })

    @app.route('/knowledge', methods=['POST'])
    def add_knowledge():
        data = request.get_json(silent=True) or {}
        try:
            entry_id = runner.run(
                agent.add_knowledge,
                data.get('category') or 'general',
                data.get('question'),
                data.get('answer'),
                data.get('keywords') or []
            )
        except SelfAIError as e:
            return jsonify({'error': e.message}), 400
        return jsonify({'id': entry_id}), 201

    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok', **runner.run(agent.get_status)})

    logger.info("Flask app created", extra={'app_name': settings.app_name})
    return app


def main():
    settings = get_settings()
    setup_logging(settings)
    app = create_app(settings=settings)
    app.run(debug=settings.debug_mode, port=5000, use_reloader=False)


if __name__ == '__main__':
    main()
