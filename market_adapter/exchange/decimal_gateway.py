# ============================================================================
# Kraken Market Adapter v0.1.0
# Decimal Gateway
# ============================================================================
#
# Purpose: Converts every numeric value returned by Kraken into
#          decimal.Decimal with ROUND_HALF_EVEN
#
# MANDATE:
#   - Kraken returns prices and volumes as strings; they MUST pass through
#     this gateway before reaching callers
#   - Float contamination is FORBIDDEN
#   - Volumes use 8 decimal places, prices use 10
#
# Error Codes:
#   - KRK-DEC-001: Decimal conversion failed
#
# ============================================================================

from decimal import Decimal, ROUND_HALF_EVEN, InvalidOperation
from typing import Optional, Union
import logging

logger = logging.getLogger(__name__)

Numeric = Union[str, int, float, Decimal, None]


class DecimalGateway:
    """
    Central conversion layer from exchange strings to Decimal.

    Example Usage:
        gateway = DecimalGateway()
        volume = gateway.to_volume("0.00123456789")   # Decimal('0.00123457')
        price = gateway.to_price("37500.1")
    """

    VOLUME_PRECISION = Decimal('0.00000001')      # 8 decimal places
    PRICE_PRECISION = Decimal('0.0000000001')     # 10 decimal places
    PERCENTAGE_PRECISION = Decimal('0.0001')      # 4 decimal places for fees

    def to_decimal(
        self,
        value: Numeric,
        precision: Optional[Decimal] = None,
        field_name: Optional[str] = None
    ) -> Decimal:
        """
        Convert a numeric value to Decimal with ROUND_HALF_EVEN.

        Args:
            value: Numeric value (str, int, float, Decimal, None)
            precision: Quantization step (default: VOLUME_PRECISION)
            field_name: Name of the source field, for logging

        Returns:
            Quantized Decimal; None converts to zero

        Raises:
            ValueError: If value cannot be converted (KRK-DEC-001)
        """
        if precision is None:
            precision = self.VOLUME_PRECISION

        if value is None:
            return Decimal('0').quantize(precision, rounding=ROUND_HALF_EVEN)

        try:
            # Always via str to avoid float precision loss
            decimal_value = Decimal(str(value))
            if not decimal_value.is_finite():
                raise ValueError("non-finite value")
            return decimal_value.quantize(precision, rounding=ROUND_HALF_EVEN)
        except (InvalidOperation, ValueError, TypeError) as e:
            logger.error(
                f"[KRK-DEC-001] Decimal conversion failed | "
                f"field={field_name} | value={value!r} | type={type(value).__name__}"
            )
            raise ValueError(
                f"KRK-DEC-001: Cannot convert {value!r} to Decimal"
            ) from e

    def to_volume(self, value: Numeric, field_name: Optional[str] = None) -> Decimal:
        """Convert to volume precision (8 decimal places)."""
        return self.to_decimal(value, self.VOLUME_PRECISION, field_name)

    def to_price(self, value: Numeric, field_name: Optional[str] = None) -> Decimal:
        """Convert to price precision (10 decimal places)."""
        return self.to_decimal(value, self.PRICE_PRECISION, field_name)

    def to_percentage(self, value: Numeric, field_name: Optional[str] = None) -> Decimal:
        return self.to_decimal(value, self.PERCENTAGE_PRECISION, field_name)

    @staticmethod
    def to_wire(value: Decimal) -> str:
        """Plain (non-scientific) string for request bodies."""
        text = format(value, 'f')
        if '.' in text:
            text = text.rstrip('0').rstrip('.')
        return text or '0'
