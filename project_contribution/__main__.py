from project_contribution.cli import app

app(prog_name="project-contribution")
