from inferx.cli import app

app()
