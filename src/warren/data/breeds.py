from __future__ import annotations

from dataclasses import dataclass

from warren.state import Breed


@dataclass(frozen=True, slots=True)
class BreedSpec:
    breed: Breed
    name: str
    coin_multiplier: float
    breeding_rate: float
    description: str


_BREEDS: dict[Breed, BreedSpec] = {
    Breed.COMMON: BreedSpec(
        breed=Breed.COMMON,
        name="Common Rabbit",
        coin_multiplier=1.0,
        breeding_rate=1.0,
        description="Your everyday rabbit. Reliable and steady.",
    ),
    Breed.RARE: BreedSpec(
        breed=Breed.RARE,
        name="Angora Rabbit",
        coin_multiplier=1.5,
        breeding_rate=1.2,
        description="A fluffy Angora rabbit. Produces 50% more coins.",
    ),
    Breed.LEGENDARY: BreedSpec(
        breed=Breed.LEGENDARY,
        name="Golden Rabbit",
        coin_multiplier=2.5,
        breeding_rate=1.5,
        description="A legendary golden rabbit. Massive coin boost.",
    ),
}


def breed_spec(breed: Breed | str) -> BreedSpec:
    return _BREEDS[Breed(breed)]


__all__ = ["BreedSpec", "breed_spec"]
