from app.petcare import create_app

app = create_app()
