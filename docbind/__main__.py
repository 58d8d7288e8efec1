from docbind.cli import app

app()
