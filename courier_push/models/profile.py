from sqlmodel import Field, SQLModel

USER_TYPE_DRIVER = "driver"


class Profile(SQLModel, table=True):
    __tablename__ = "profiles"
    id: str = Field(primary_key=True)  # same id as the auth user
    user_type: str = "customer"  # customer | driver | admin
