from kanban import create_app

app = create_app()

if __name__ == "__main__":
    with app.app_context():
        from kanban.models import db
        db.create_all()
    app.run(debug=True, port=8000)
