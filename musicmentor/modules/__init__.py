"""Domain modules package."""

from musicmentor.modules.availability import models as availability_models  # noqa: F401
from musicmentor.modules.booking import models as booking_models  # noqa: F401
from musicmentor.modules.identity import models as identity_models  # noqa: F401
from musicmentor.modules.mentors import models as mentors_models  # noqa: F401
from musicmentor.modules.messaging import models as messaging_models  # noqa: F401
from musicmentor.modules.notifications import models as notifications_models  # noqa: F401
from musicmentor.modules.outbox import models as outbox_models  # noqa: F401
from musicmentor.modules.video import models as video_models  # noqa: F401
