"""Domain layer for famfin application."""

# Services are imported lazily: the database layer imports
# famfin.domain.entities, and the services import the database layer.
_SERVICES = {
    "AccountService": "famfin.domain.account",
    "CategoryService": "famfin.domain.category",
    "CreditCardService": "famfin.domain.card",
    "EmergencyFundService": "famfin.domain.emergency_fund",
    "FamilyService": "famfin.domain.family",
    "GoalService": "famfin.domain.goal",
    "InvoiceService": "famfin.domain.invoice",
    "ProjectionService": "famfin.domain.projection",
    "TransactionService": "famfin.domain.transaction",
}

__all__ = sorted(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        import importlib

        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
