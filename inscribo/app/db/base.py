from inscribo.app.db.base_class import Base

# Import models to register metadata for Base.metadata.create_all in tests
from inscribo.app.models.institution import Institution  # noqa: F401
from inscribo.app.models.user import User  # noqa: F401
from inscribo.app.models.lead_stage import LeadStage  # noqa: F401
from inscribo.app.models.lead import Lead  # noqa: F401
from inscribo.app.models.interaction import Interaction  # noqa: F401
from inscribo.app.models.stage_change import StageChange  # noqa: F401
from inscribo.app.models.visit import Visit  # noqa: F401
from inscribo.app.models.webhook import Webhook  # noqa: F401
