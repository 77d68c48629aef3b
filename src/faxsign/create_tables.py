# create_tables.py
import logging

from faxsign.database import engine, Base
# Import every model so it registers with Base
from faxsign.modules.users.models import Department, User
from faxsign.modules.faxes.models import Comment, Fax, FaxPermission
from faxsign.modules.workflows.models import SignatureWorkflow, Signer

logger = logging.getLogger(__name__)


def create_tables(bind=None):
    """Creates every table that does not exist yet"""
    bind = bind or engine
    logger.info("Tables to create: %s", list(Base.metadata.tables.keys()))
    Base.metadata.create_all(bind=bind)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_tables()
