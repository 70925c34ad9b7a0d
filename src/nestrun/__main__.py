from nestrun.cli import app

app()
