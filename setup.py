from pathlib import Path

from setuptools import find_packages, setup

setup(
    name="roi_annotation",
    version=Path("./roi_annotation/VERSION").read_text().strip(),
    description="Polygon region-of-interest annotation engine",
    packages=find_packages(exclude=["tests", "tests.*", "*.tests", "*.tests.*"]),
    package_data={"roi_annotation": ["VERSION"]},
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "opencv-python-headless",
        "easydict",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["roi_annotation=roi_annotation.cli:main"],
    },
)
