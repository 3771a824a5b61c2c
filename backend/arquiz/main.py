from flask import Blueprint, jsonify

from arquiz.runtime import current_runtime

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the AR poster quiz server!'})

@main.route('/health')
def health():
    runtime = current_runtime()
    return jsonify({'status': 'ok', 'sessions': len(runtime.sessions), 'questions': len(runtime.bank)})
