# Importing the models registers every table on the shared metadata
from bepawa.domain.profiles import models as profiles_models  # noqa: F401
from bepawa.domain.products import models as products_models  # noqa: F401
from bepawa.domain.orders import models as orders_models  # noqa: F401
from bepawa.domain.notifications import models as notifications_models  # noqa: F401
from bepawa.domain.procurement import models as procurement_models  # noqa: F401
from bepawa.domain.appointments import models as appointments_models  # noqa: F401
from bepawa.domain.audit import models as audit_models  # noqa: F401
from bepawa.domain.customers import models as customers_models  # noqa: F401
from bepawa.domain.finance import models as finance_models  # noqa: F401
from bepawa.domain.pos import models as pos_models  # noqa: F401
from bepawa.domain.prescriptions import models as prescriptions_models  # noqa: F401
from bepawa.domain.categories import models as categories_models  # noqa: F401
from bepawa.domain.credit import models as credit_models  # noqa: F401
