"""Application entry point."""
import os
import click
from flask.cli import with_appcontext
from qr_attendance import create_app, db
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Create Flask app
app = create_app()

@app.cli.command()
@with_appcontext
def reset_db():
    """Reset database completely."""
    if click.confirm('This will delete all data and recreate tables. Continue?'):
        db.drop_all()
        db.create_all()
        click.echo('Database reset complete.')
        
        if click.confirm('Seed with demo data?'):
            from qr_attendance.services.seed_service import SeedService
            summary = SeedService.seed_all()
            click.echo(f"Seeded {summary['students']} students.")

if __name__ == '__main__':
    # Development server
    port = int(os.environ.get('PORT', 5000))
    host = os.environ.get('HOST', '127.0.0.1')
    debug = app.config.get('DEBUG', False)
    
    app.run(host=host, port=port, debug=debug)
