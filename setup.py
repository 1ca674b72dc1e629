from setuptools import find_packages, setup

setup(
    name="xtalpy",
    version="0.1.0",
    description="Unit cells, periodic coordinates and symmetry expansion for crystal structures",
    python_requires=">=3.8",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "numpy",
        "scipy",
    ],
    extras_require={
        "test": ["pytest"],
        "docs": ["sphinx", "myst_parser", "furo"],
    },
)
