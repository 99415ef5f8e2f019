from slackhello.cli import app

app()
