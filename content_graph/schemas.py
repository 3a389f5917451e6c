from datetime import date

from pydantic import BaseModel, EmailStr, Field

# Request bodies only.  These are the first line of validation at the HTTP
# edge; the models re-check every rule at write time regardless.


# --- Account / Profile ---

class AccountCreate(BaseModel):
    handle: str = Field(min_length=3, max_length=30)
    email: EmailStr


class AccountUpdate(BaseModel):
    handle: str | None = Field(None, min_length=3, max_length=30)
    email: EmailStr | None = None


class ProfileCreate(BaseModel):
    first_name: str = Field(min_length=2, max_length=50)
    last_name: str = Field(min_length=2, max_length=50)
    bio: str | None = Field(None, max_length=1000)
    birth_date: date | None = None


class ProfileUpdate(BaseModel):
    first_name: str | None = Field(None, min_length=2, max_length=50)
    last_name: str | None = Field(None, min_length=2, max_length=50)
    bio: str | None = Field(None, max_length=1000)
    birth_date: date | None = None


class AccountRegister(BaseModel):
    account: AccountCreate
    profile: ProfileCreate | None = None


class AccountModify(BaseModel):
    account: AccountUpdate | None = None
    profile: ProfileUpdate | None = None


# --- ContentItem ---

class ContentItemCreate(BaseModel):
    account_id: int
    title: str = Field(min_length=5, max_length=200)
    body: str = Field(min_length=10, max_length=5000)
    published: bool = False


class ContentItemUpdate(BaseModel):
    account_id: int | None = None
    title: str | None = Field(None, min_length=5, max_length=200)
    body: str | None = Field(None, min_length=10, max_length=5000)
    published: bool | None = None


class TagAssignment(BaseModel):
    tag_ids: list[int]


# --- Tag ---

class TagCreate(BaseModel):
    name: str = Field(min_length=2, max_length=50)
    description: str | None = Field(None, max_length=500)


class TagUpdate(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=50)
    description: str | None = Field(None, max_length=500)


# --- Pagination ---

class PaginatedResponse(BaseModel):
    items: list
    total_count: int
    total_pages: int
    page: int
    page_size: int
