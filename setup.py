from setuptools import setup, find_packages

setup(
    name="simkernel",
    version="0.1.0",
    description="Discrete-event simulation kernel with cooperative processes and channels",
    author="adamfilli",
    packages=find_packages(include=["simkernel", "simkernel.*"]),
    install_requires=[
        "pandas",
    ],
    extras_require={
        "test": ["pytest"],
    },
    include_package_data=True,
    python_requires=">=3.10",
)
