from dotenv import load_dotenv

load_dotenv()

from pooldraft import create_app
from pooldraft.extensions import db
from pooldraft.helpers.timeouts import check_all_timeouts
from pooldraft.routes import register_blueprints

api = create_app()

register_blueprints(api)


def init_db():
    """Create draft tables if they're missing."""
    db.create_all()


with api.app_context():
    init_db()


@api.cli.command("check-timeouts")
def check_timeouts_command():
    """One sweep over running drafts, for schedulers that prefer a shell command to the HTTP hook."""
    results = check_all_timeouts()
    skipped = sum(1 for r in results if r["skipped"])
    reminded = sum(1 for r in results if r["reminded"])
    print(f"checked {len(results)} drafts: {skipped} skipped, {reminded} reminded")


if __name__ == "__main__":
    api.run(debug=True)
