from arquiz import create_app, socketio

app = create_app()

if __name__ == '__main__':
    with app.app_context():
        from arquiz import db
        db.create_all()
    # Use SocketIO server to enable websockets in dev
    socketio.run(app, debug=True)
