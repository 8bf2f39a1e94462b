# run.py
from petavet import create_app, db
from petavet.services.subscription_service import seed_subscription_plans
from flask.cli import with_appcontext
import logging

logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s'
)

app = create_app()


@app.cli.command('init-db')
@with_appcontext
def init_db():
    db.create_all()
    added = seed_subscription_plans()
    print(f'Database initialized ({added} subscription plans added).')


if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
