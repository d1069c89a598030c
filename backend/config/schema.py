"""Root GraphQL schema."""
import strawberry

from apps.core.schema import AuthMutation, CoreQuery
from apps.firms.schema import FirmMutation, FirmQuery
from apps.invoices.schema import InvoiceMutation, InvoiceQuery
from apps.scheduling.schema import SchedulingMutation, SchedulingQuery
from apps.users.schema import UserMutation, UserQuery


@strawberry.type
class Query(
    CoreQuery,
    UserQuery,
    FirmQuery,
    InvoiceQuery,
    SchedulingQuery,
):
    @strawberry.field
    def health(self) -> str:
        return "ok"


@strawberry.type
class Mutation(
    AuthMutation,
    UserMutation,
    FirmMutation,
    InvoiceMutation,
    SchedulingMutation,
):
    pass


schema = strawberry.Schema(
    query=Query,
    mutation=Mutation,
)
