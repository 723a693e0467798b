from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional
from datetime import datetime

class UserBase(BaseModel):
    email: EmailStr
    role: Optional[str] = 'Learner'

# Schema for creating a user in our database AFTER Firebase authentication
# It will use firebase_uid obtained from the Firebase ID token.
class UserCreateInternal(UserBase):
    firebase_uid: str
    display_name: Optional[str] = None
    email_verified: bool = False

# Schema for displaying user information (sending data back to client)
class UserDisplay(UserBase):
    id: int
    firebase_uid: str
    display_name: Optional[str] = None
    email_verified: bool = Field(False, description="Whether the identity provider reports a verified email")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

# Schema representing the data decoded from a Firebase ID token
class TokenData(BaseModel):
    firebase_uid: str
    email: EmailStr
    email_verified: bool = False
    name: Optional[str] = None


# Request bodies for /register and /login: the client sends its Firebase ID token.
class UserRegisterRequest(BaseModel):
    firebase_id_token: str
    display_name: Optional[str] = Field(None, max_length=255)


class UserLoginRequest(BaseModel):
    firebase_id_token: str

class AuthResponse(BaseModel):
    message: str
    user: Optional[UserDisplay] = None
