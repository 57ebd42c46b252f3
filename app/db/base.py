# Import every model so Base.metadata is complete for create_all and alembic.
from app.db.session import Base  # noqa: F401
from app.models.user import User  # noqa: F401
from app.models.category import Category  # noqa: F401
from app.models.transaction import Transaction  # noqa: F401
from app.models.shared_budget import SharedBudget, shared_budget_categories  # noqa: F401
from app.models.shared_budget_member import SharedBudgetMember  # noqa: F401
from app.models.shared_expense import SharedExpense, SharedExpenseSplit  # noqa: F401
from app.models.settlement import Settlement  # noqa: F401
