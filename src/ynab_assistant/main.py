from ynab_assistant.cli import cli


def main() -> None:
    cli(prog_name="ynab-assistant")


if __name__ == "__main__":
    main()
