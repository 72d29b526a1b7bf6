from sqlalchemy import Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from townmatch.database import Base

# Town rows carrying this code are administrative-only and never offered as a match
NON_ADDRESSABLE_TOWN_CODE = 3


class City(Base):
    __tablename__ = "cities"

    lg_code: Mapped[str] = mapped_column(String(6), primary_key=True)
    pref_name: Mapped[str] = mapped_column(String(10), index=True)
    county_name: Mapped[str] = mapped_column(String(50), default="")
    city_name: Mapped[str] = mapped_column(String(50), default="")
    # Ward of a designated city (政令指定都市の区)
    od_city_name: Mapped[str] = mapped_column(String(50), default="")

    towns: Mapped[list["Town"]] = relationship(back_populates="city")


class Town(Base):
    __tablename__ = "towns"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    lg_code: Mapped[str] = mapped_column(String(6), ForeignKey("cities.lg_code"), index=True)
    town_id: Mapped[str] = mapped_column(String(7))
    oaza_town_name: Mapped[str] = mapped_column(String(100), default="")
    chome_name: Mapped[str] = mapped_column(String(20), default="")
    koaza_name: Mapped[str] = mapped_column(String(100), default="")
    town_code: Mapped[int] = mapped_column(Integer, default=1)
    rep_pnt_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    rep_pnt_lon: Mapped[float | None] = mapped_column(Float, nullable=True)

    city: Mapped["City"] = relationship(back_populates="towns")
