"""Domain exceptions raised by the reporting core and translated to HTTP errors by the routers."""


class ReportingError(ValueError):
    """Base exception for reporting rule violations."""


class InvalidReportingPeriodError(ReportingError):
    """Raised when a year/month pair does not name a reporting period."""


class ProductNotCompleteError(ReportingError):
    """Raised when submitting a product whose metrics are not all completed."""

    def __init__(self, product_id: str, status: str):
        self.product_id = product_id
        self.status = status
        super().__init__(
            f"Cannot submit product {product_id}: all metrics must be completed (current status: {status})"
        )


class ReturnNotReadyError(ReportingError):
    """Raised when a whole return is submitted before every allocated product is complete."""

    def __init__(self, reporting_period: str, incomplete_products: list[str]):
        self.reporting_period = reporting_period
        self.incomplete_products = incomplete_products
        if incomplete_products:
            detail = f"incomplete products: {', '.join(incomplete_products)}"
        else:
            detail = "no products are allocated"
        super().__init__(f"Cannot submit return for {reporting_period}: {detail}")
