from booking_engine.stores.calendar import CompositeCalendar, InMemoryCalendar, JobScheduleCalendar
from booking_engine.stores.catalog import InMemoryAddOnCatalog, InMemoryPricingStore
from booking_engine.stores.customers import InMemoryCustomerDirectory
from booking_engine.stores.jobs import InMemoryJobStore

__all__ = [
    "CompositeCalendar",
    "InMemoryCalendar",
    "JobScheduleCalendar",
    "InMemoryAddOnCatalog",
    "InMemoryPricingStore",
    "InMemoryCustomerDirectory",
    "InMemoryJobStore",
]
