"""
Stock levels and tool availability.
"""
from carwash.errors import ValidationError
from carwash.models.inventory import MovementType

OUT_OF_STOCK = "out_of_stock"
LOW_STOCK = "low_stock"
IN_STOCK = "in_stock"
OVERSTOCKED = "overstocked"


def stock_status(current: float, min_level: float, max_level: float) -> str:
    if current <= 0:
        return OUT_OF_STOCK
    if current <= min_level:
        return LOW_STOCK
    if current >= max_level:
        return OVERSTOCKED
    return IN_STOCK


def validate_stock_levels(current: float, min_level: float, max_level: float, cost_per_unit: float) -> None:
    if current < 0 or min_level < 0 or max_level < 0 or cost_per_unit <= 0:
        raise ValidationError("Invalid numeric values")
    if min_level >= max_level:
        raise ValidationError("Minimum stock level must be less than maximum stock level")


def apply_movement(current: float, movement: MovementType, quantity: float) -> float:
    """Return the new balance after moving ``quantity`` in or out."""
    if quantity <= 0:
        raise ValidationError("Quantity must be greater than 0")
    if movement == MovementType.OUT:
        if quantity > current:
            raise ValidationError(
                f"Insufficient stock. Available: {current:g}, Requested: {quantity:g}"
            )
        return current - quantity
    return current + quantity


def tool_matches_status(tool, status: str, low_ratio: float) -> bool:
    """Filter predicate for the tool list's ``status`` parameter."""
    if status == "active":
        return tool.is_active
    if status == "inactive":
        return not tool.is_active
    if status == "low_availability":
        if not tool.total_quantity:
            return False
        return tool.available_quantity / tool.total_quantity < low_ratio
    if status == "out_of_stock":
        return tool.available_quantity == 0
    return True


def validate_tool_quantities(replacement_cost: float, total: int, available: int) -> None:
    if replacement_cost < 0 or total < 0 or available < 0:
        raise ValidationError("Invalid numeric values")
    if available > total:
        raise ValidationError("Available quantity cannot exceed total quantity")
