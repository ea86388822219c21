"""Pure data types for devbao.core."""

from enum import Enum


class ProductType(Enum):
    """Server products a node can run."""

    DEFAULT = ""  # Whichever product binary is installed
    BAO = "bao"  # OpenBao
    VAULT = "vault"  # HashiCorp Vault

    @property
    def env_prefix(self) -> str:
        """Prefix of the client environment variables (``BAO_ADDR``...)."""
        if self is ProductType.BAO:
            return "BAO_"
        return "VAULT_"


NODE_TYPES = tuple(product.value for product in ProductType)
