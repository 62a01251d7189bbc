from allocflow.cli import app

app(prog_name="allocflow")
