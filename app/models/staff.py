from sqlmodel import Field, SQLModel


class StaffUserBase(SQLModel):
    email: str = Field(unique=True, index=True)
    full_name: str | None = None
    is_active: bool = True


class StaffUser(StaffUserBase, table=True):
    __tablename__ = "staff_users"
    id: int | None = Field(default=None, primary_key=True)
    hashed_password: str


class StaffUserPublic(SQLModel):
    id: int
    email: str
    full_name: str | None = None
    is_active: bool
