# gatefetch/__main__.py
from gatefetch.cli import cli

if __name__ == "__main__":
    cli(prog_name="gatefetch")
