# create.py - issue an access token for a new client
from supportdesk import create_app
from supportdesk.errors import ValidationError
from supportdesk.extensions import db
from supportdesk.services.token_service import create_token


def main():
    app = create_app()
    with app.app_context():
        db.create_all()
        client_id = input("Client ID (lowercase slug): ").strip().lower()
        name = input("Client name: ").strip()
        email = input("Client email (optional): ").strip()

        try:
            row = create_token(client_id, name, email or None)
        except ValidationError as e:
            print(e.message)
            return

        print(f"Token for {row.client_name}: {row.token}")
        print(f"Portal link: {app.config['PORTAL_BASE_URL']}?token={row.token}")

if __name__ == "__main__":
    main()
