# backend/wsgi.py
from sqlalchemy.exc import SQLAlchemyError

from erp_master import create_app
from erp_master.services.document_store import get_document_store

app = create_app()

# A fresh device with an empty catalog pulls the mirror's copy once at startup
if app.config["MIRROR_RECOVER_ON_START"]:
    with app.app_context():
        try:
            if get_document_store().recover_from_mirror():
                app.logger.info("Recovered document from the %s mirror", app.config["MIRROR_BACKEND"])
        except SQLAlchemyError:
            app.logger.exception("Startup recovery skipped: storage is not ready (run `flask db upgrade`)")
