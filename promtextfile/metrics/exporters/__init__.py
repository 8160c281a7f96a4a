from .textfile import TextfilePublisher

__all__ = ['TextfilePublisher']
