"""Payment Gateway Interface

Defines the contract for talking to the external payment processor.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List
from src.domain.invoice import ProcessorInvoice
from src.domain.plan import Plan


class PaymentGateway(ABC):
    """
    Payment processor abstraction

    Implementations raise UpstreamUnavailable (or CheckoutUnavailable for
    checkout) when the processor cannot be reached; they never touch local
    subscription state.
    """

    @abstractmethod
    async def create_checkout_session(
        self,
        user_id: str,
        plan: Plan,
        success_url: str,
        cancel_url: str,
        customer_id: str = None,
    ) -> str:
        """
        Create a hosted checkout session for a paid plan

        Args:
            user_id: User buying the plan
            plan: Target plan (must carry a processor price reference)
            success_url: Redirect after successful payment
            cancel_url: Redirect if the user abandons checkout
            customer_id: Existing processor customer, if any

        Returns:
            URL the user must be redirected to

        Raises:
            CheckoutUnavailable: If the session could not be created
        """
        pass

    @abstractmethod
    async def update_subscription(
        self, processor_subscription_id: str, patch: Dict[str, Any]
    ) -> None:
        """
        Patch a processor subscription (e.g. cancel_at_period_end)

        Raises:
            UpstreamUnavailable: If the processor cannot be reached
        """
        pass

    @abstractmethod
    async def cancel_subscription(self, processor_subscription_id: str) -> None:
        """
        Cancel a processor subscription immediately, without proration

        Raises:
            UpstreamUnavailable: If the processor cannot be reached
        """
        pass

    @abstractmethod
    async def list_invoices(self, customer_id: str, limit: int = 12) -> List[ProcessorInvoice]:
        """
        List the processor invoices of a customer, newest first

        Raises:
            UpstreamUnavailable: If the processor cannot be reached
        """
        pass
