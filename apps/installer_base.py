# NCSTACK v1.0
from abc import ABC, abstractmethod


class BaseInstaller(ABC):
    '''
    Base class for stack installers
    Stages are called in order: check_dependencies, get_configuration,
    provision, install
    '''

    def __init__(self, manifest, settings):
        '''Initialize installer with stack manifest and run settings'''
        self.manifest = manifest
        self.settings = settings
        self.app_name = manifest['name']

    @abstractmethod
    def check_dependencies(self):
        '''Check if system has required dependencies'''
        pass  # Subclass MUST implement!

    @abstractmethod
    def get_configuration(self):
        '''Get configuration from user or existing state'''
        pass  # Subclass MUST implement!

    def provision(self, config):
        '''Prepare host state (directories, networks, config files)'''
        return True

    @abstractmethod
    def install(self, config):
        '''Start the stack'''
        pass  # Subclass MUST implement!
