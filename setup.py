"""Install the Efficio accounts service."""

from setuptools import setup, find_packages

setup(
    name='efficio-accounts',
    version='0.1.0',
    packages=find_packages(exclude=['*test*']),
    package_data={'efficio': ['config.py']},
    py_modules=['wsgi'],
    install_requires=[
        "flask",
        "click",
        "redis",
        "fakeredis",
        "argon2-cffi",
        "wtforms",
        "python-json-logger>=3.1",
    ],
    extras_require={
        "test": [
            "pytest",
            "hypothesis",
        ]
    },
    zip_safe=False
)
