from colormatch import create_app, socketio

app = create_app()
 
if __name__ == '__main__':
    # Use SocketIO server so round events reach connected clients in dev
    socketio.run(app, debug=True)
