from publish_spine.cli import app

if __name__ == "__main__":
    app()
