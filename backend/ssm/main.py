from flask import Blueprint, jsonify, current_app, send_from_directory

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Shoot Shag Marry game server is running!'})

@main.route('/images/<path:filename>')
def image_file(filename):
    return send_from_directory(current_app.config['IMAGES_DIR'], filename)
