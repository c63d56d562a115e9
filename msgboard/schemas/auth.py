from pydantic import BaseModel, ConfigDict, Field


class RegisterIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(min_length=1, max_length=50)
    email: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1)
    first_name: str | None = Field(default=None, alias="firstName", max_length=50)
    last_name: str | None = Field(default=None, alias="lastName", max_length=50)


class LoginIn(BaseModel):
    # username or email
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class SendCodeIn(BaseModel):
    email: str = Field(min_length=1)


class VerifyCodeIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(min_length=1)
    verification_code: str = Field(min_length=1, alias="verificationCode")


class UpdatePasswordIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(min_length=1)
    reset_token: str = Field(min_length=1, alias="resetToken")
    new_password: str = Field(min_length=1, alias="newPassword")
    confirm_password: str = Field(min_length=1, alias="confirmPassword")
