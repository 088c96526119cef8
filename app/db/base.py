from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import DeclarativeBase

# sqlite only autoincrements INTEGER primary keys
BigId = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):
    pass
