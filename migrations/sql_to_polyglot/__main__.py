from migrations.sql_to_polyglot.cli import app

app()
