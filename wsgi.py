from kanban import create_app

app = create_app()

# Run with: gunicorn wsgi:app
