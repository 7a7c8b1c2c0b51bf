from flask import Blueprint, jsonify, current_app
from gameops import get_sessions

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the GameOps scorekeeping server!'})

@main.route('/health')
def health():
    return jsonify({
        'status': 'ok',
        'store': current_app.config.get('GAME_STORE', 'sql'),
        'live_sessions': len(get_sessions()),
    })
