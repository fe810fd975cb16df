"""AMM math."""

from quantumdex.amm.constant_product import ConstantProduct, constant_product

__all__ = ["ConstantProduct", "constant_product"]
