from . import schema, validators
from .schema import PlanDetail, PricingModel, load_plan

__all__ = ["schema", "validators", "PlanDetail", "PricingModel", "load_plan"]
