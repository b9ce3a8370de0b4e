from stepgen.cli import app

app()
