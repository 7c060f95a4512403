from setuptools import setup


setup(
    name="medstats",
    version="0.1.0",
    description="Radiology productivity statistics from pipe-delimited study exports",
    packages=["medstats", "medstats.exports"],
    install_requires=[
        "pandas",
        "chardet",
        "openpyxl",
        "streamlit",
    ],
    entry_points={
        "console_scripts": [
            "medstats=medstats.cli:main",
        ]
    },
)
