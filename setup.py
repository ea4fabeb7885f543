from setuptools import setup, find_namespace_packages


setup(
    name='cpcurve_core',
    version='0.1',
    packages=find_namespace_packages(where="src", include=["cpcurve_core*"]),
    package_dir={"": "src"},
    python_requires=">=3.8",
    install_requires=[
        'flask',
        'flask-openapi3',
        'pydantic>=2',
        'pydantic-settings',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'cpcurve_core = cpcurve_core.main:main',
        ],
    },
)
