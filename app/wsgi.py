from app.billing import create_app

app = create_app()
